"""StudyHub: AI-assisted vocabulary, writing, speaking and reading practice."""
