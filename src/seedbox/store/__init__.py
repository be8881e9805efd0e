"""Seed store — one JSON file per seed, grouped by session namespace.

Layout:
    ~/.seedbox/
    ├── config.json                        # Store settings (ttl, filter, model, ...)
    ├── seeds/
    │   ├── 3f2a9c1b7d4e/                  # Namespace: project hash or session id
    │   │   └── seed-1760000000000-k2j9x0a.json
    │   └── 0b8e4c52-.../                  # Namespace: host conversation id
    ├── results/
    │   └── seed-1760000000000-k2j9x0a-result.md   # Expansion output (front matter + body)
    └── sessions/<project_hash>/current    # Legacy host session id file (read only)

Derived fields (``is_outdated``, ``freshness_tier``) are computed on read
and never written back.
"""
