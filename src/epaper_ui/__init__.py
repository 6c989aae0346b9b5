"""FastHTML user interface for the e-paper viewer."""
