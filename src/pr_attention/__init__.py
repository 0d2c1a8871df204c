"""PR Attention - sync open pull requests and score what needs a reviewer's eye."""

__version__ = "0.1.0"
