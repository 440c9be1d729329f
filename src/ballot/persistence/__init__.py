"""Persistence — event log and state snapshots."""
