"""Command-line front end for the OCCI client."""
