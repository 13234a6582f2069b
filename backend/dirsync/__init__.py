"""Directory background sync — adaptive, incremental LDAP user synchronisation."""
