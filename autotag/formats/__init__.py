"""On-document tag syntaxes."""
