"""Services: the release pipeline and its collaborators."""
