"""Language-model collaborator and the statement guard for ad-hoc SQL."""
