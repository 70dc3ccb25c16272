"""Release pipeline: preflight, version resolution, changelog, publishing."""
