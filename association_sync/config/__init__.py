"""Runtime configuration: environment settings and the site table."""
