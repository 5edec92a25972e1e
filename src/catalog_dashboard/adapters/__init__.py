"""Adapters for remote systems consumed by the data layer."""
