"""
Stdio JSON-RPC transport.

Components:
- framing.py: newline-delimited JSON framer shared by both ends
- messages.py: envelope builders, error codes, protocol constants
- client.py: subprocess-owning client with a pending-request table and timeouts
- server.py: method registry + stdio serve loop used by the tool server
"""
