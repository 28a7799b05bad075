import threading
import time

import zmq

QUIT = 'quit'
CLEAN = 'clean'


class ControlListener:
    """Listens for control messages over ZMQ and turns them into a cancellation signal.

    Messages are plain strings: "quit" stops playback, "clean" stops playback
    and asks for every identity to be removed afterwards.
    """

    def __init__(self, address="tcp://127.0.0.1:5556", cancel_event=None, debug_enabled=False):
        self.address = address
        self.cancel_event = cancel_event or threading.Event()
        self.cleanup_requested = threading.Event()
        self.debug_enabled = debug_enabled
        self.context = zmq.Context()
        self.socket = None
        self.is_running = False
        self.listener_thread = None
        self.stats = {
            'messages_received': 0,
            'unknown_messages': 0,
            'start_time': None
        }

    def start_listener(self):
        """Start listening for control messages. Returns False if the socket could not be set up."""
        try:
            self.socket = self.context.socket(zmq.SUB)
            self.socket.connect(self.address)
            self.socket.setsockopt(zmq.SUBSCRIBE, b"")
            self.socket.setsockopt(zmq.RCVTIMEO, 1000)

            self.is_running = True
            self.stats['start_time'] = time.time()
            self.listener_thread = threading.Thread(target=self._listen_loop, daemon=True)
            self.listener_thread.start()

            print(f"Control listener started on {self.address}")
            return True

        except zmq.ZMQError as e:
            print(f"Failed to start control listener: {e}")
            self.is_running = False
            return False

    def stop_listener(self):
        self.is_running = False
        if self.listener_thread:
            self.listener_thread.join(timeout=2)
        if self.socket:
            self.socket.close()
        self.context.term()
        print("Control listener stopped")

    def handle_message(self, message):
        """Apply one control message. Returns True if it was understood."""
        self.stats['messages_received'] += 1
        command = message.strip().lower()

        if command == QUIT:
            self.cancel_event.set()
        elif command == CLEAN:
            self.cleanup_requested.set()
            self.cancel_event.set()
        else:
            self.stats['unknown_messages'] += 1
            if self.debug_enabled:
                print(f"Ignoring unknown control message: {message!r}")
            return False

        if self.debug_enabled:
            print(f"Control message received: {command}")
        return True

    def _listen_loop(self):
        while self.is_running:
            try:
                message = self.socket.recv_string()
                self.handle_message(message)
            except zmq.Again:
                # Timeout - no message received
                continue
            except zmq.ZMQError as e:
                if self.is_running:
                    print(f"Control listener error: {e}")
                time.sleep(0.1)
