# lounge/sse_utils.py
import queue
import json
import threading
from lounge.extensions import logger


class MessageAnnouncer:
    """
    Manages Server-Sent Event listeners and message broadcasting.
    Uses thread-safe queues for listeners, since announcements come from the
    ticker thread as well as from request handlers.
    """
    def __init__(self, maxsize: int = 50):
        self.listeners = []
        self.maxsize = maxsize
        self._lock = threading.Lock()

    def listen(self):
        """
        Adds a new listener queue.
        Returns the queue for the listener to consume messages from.
        """
        # Bounded so a client that disconnected uncleanly is eventually dropped
        q = queue.Queue(maxsize=self.maxsize)
        with self._lock:
            self.listeners.append(q)
            logger.info(f"SSE Listener added. Total listeners: {len(self.listeners)}")
        return q

    def unlisten(self, q):
        with self._lock:
            if q in self.listeners:
                self.listeners.remove(q)
                logger.info(f"SSE Listener removed. Total listeners: {len(self.listeners)}")

    def announce(self, msg: str):
        """
        Sends a message to all active listeners.
        Removes listeners whose queues are full (indicating potential disconnection).
        """
        with self._lock:
            # Iterate in reverse to safely remove listeners
            for i in reversed(range(len(self.listeners))):
                try:
                    self.listeners[i].put_nowait(msg)
                except queue.Full:
                    del self.listeners[i]
                    logger.info(f"SSE Listener removed (queue full). Total listeners: {len(self.listeners)}")

            logger.debug(f"SSE Announced message to {len(self.listeners)} listeners.")


def format_sse(data: dict, event: str = None) -> str:
    """
    Formats data into the Server-Sent Event message format.
    Expects data as a dictionary, which will be converted to JSON.

    Args:
        data: The dictionary payload for the event.
        event: Optional event type name.

    Returns:
        A string formatted according to the SSE specification.
    """
    try:
        json_data = json.dumps(data)
        msg = f'data: {json_data}\n\n'
        if event is not None:
            msg = f'event: {event}\n{msg}'
        return msg
    except TypeError as e:
        logger.error(f"Error formatting SSE data: {e}. Data: {data}")
        # Fallback: send an error message if JSON serialization fails
        error_data = json.dumps({"error": "Failed to serialize event data", "details": str(e)})
        return f'event: error\ndata: {error_data}\n\n'
