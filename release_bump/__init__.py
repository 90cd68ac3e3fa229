"""release-bump: semantic version bumps with transactional file rewrites."""
