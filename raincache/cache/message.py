"""
RainCache - Message Cache
"""

from .entity import EntityCache


class MessageCache(EntityCache):
    """
    Cache for message entities.

    Keys are ``message.<id>``; the index of known message ids lives under
    the ``message`` namespace.

    Example:
        messages = MessageCache(engine)
        bound = await messages.update("42", {"content": "hi"})
        assert bound.bound_object == {"content": "hi", "id": "42"}
        await bound.remove()
    """

    namespace = "message"
