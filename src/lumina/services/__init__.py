"""Workflow engine, content metrics, engagement, discussion and assistant services."""
