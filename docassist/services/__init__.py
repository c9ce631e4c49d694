"""Business logic; every public method takes the caller's OwnerContext."""
