"""
Bluetooth serial links

- Platform: supplies the adapter state, the paired peers and RFCOMM sockets.
  BluezPlatform talks to BlueZ on Linux, LoopbackPlatform runs in-process over socket pairs.
- Conduit: abstraction of a bi-directional channel. Combines 2 streams for reading and writing.
  SocketConduit is the active link over a connected socket.
- Connector: opens a conduit to an endpoint. RfcommConnector connects to a paired peer
  under the serial port profile UUID.
- ServerListener: a single-connection server. A background thread accepts one peer and posts
  what it reads as events.
- ConnectionManager - the facade. Runs one role at a time: idle, client or server.


## Threading

Client operations (adapter check, peer selection, connect, send) block the calling thread.

The server runs one background thread. It never calls application code: chunks read are queued
on the manager's QueuedEventSource and the application calls publish() from its own thread
(for example a UI loop) to have its callbacks invoked. The thread is stopped by setting its stop
event and then closing the sockets it is blocked on.
"""
