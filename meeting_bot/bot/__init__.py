"""Slack-facing layer: Bolt app, handlers and Block Kit builders."""
