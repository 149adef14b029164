"""Register Blackbox Exporter probes and Prometheus scrape jobs over HTTP."""
