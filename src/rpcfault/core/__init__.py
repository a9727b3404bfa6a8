"""Core classification, configuration and logging for rpcfault."""
