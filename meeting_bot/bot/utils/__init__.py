"""Slack text helpers."""
