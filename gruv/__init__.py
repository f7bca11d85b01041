"""gruv: GitHub repository update viewer.

Indexes dated Markdown activity reports for GitHub repositories, serves them
over HTTP, and regenerates them through a single-worker update queue.
"""
