"""Offline-first attendance capture and sync.

The package is organized by feature modules (records, remote, sync, session)
around a durable local queue and a thin command-line layer.
"""
