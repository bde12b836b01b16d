"""Build pipeline: settings, page tree, templates and output."""
