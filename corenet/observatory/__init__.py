"""Signalling observatory: configuration, event hub, health poller and web server."""