"""Concourse resource for GitHub pull requests: put step."""
