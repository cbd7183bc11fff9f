"""HTTP interface to the module catalog."""
