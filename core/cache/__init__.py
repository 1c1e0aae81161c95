from .valkey_client import ValkeyClient, valkey_client

__all__ = ["ValkeyClient", "valkey_client"]
