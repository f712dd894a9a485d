"""xn2 collection agent process: settings, logging and the metrics web app."""
