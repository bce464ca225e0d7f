"""Settings Migrations — version-gated transformations of the persisted user config."""
