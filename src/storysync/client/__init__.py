"""Client side of storysync: service client, local store model and sync."""
