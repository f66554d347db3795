"""Merging nested overrides into TOML configuration."""