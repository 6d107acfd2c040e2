"""Payment provider integrations, webhook verification and status normalization."""
