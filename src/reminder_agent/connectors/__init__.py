"""Front-ends that talk to a running agent (console REPL)."""
