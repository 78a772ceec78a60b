"""Real-time screen-annotation relay: session core, uploads and configuration."""
