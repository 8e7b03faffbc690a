"""Benchmarking subsystem for clibench.

Runs a fixed sequence of tool invocations one at a time, times each
one, and accumulates the durations per tool version in a persistent
report that can be rendered as a comparison table.
"""
