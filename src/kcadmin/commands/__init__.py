"""Built-in sub-command groups for the kcadmin CLI."""
