"""Deployment CLI for the Azure RStudio cluster (directory, servers, image, cluster)."""
