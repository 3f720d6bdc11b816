from wiki_chat.client.relay_client import RelayClient

__all__ = ["RelayClient"]
