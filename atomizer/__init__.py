"""
Atomizer package.

Decomposes heading/list structured text into content atoms and structural
contexts, persists them, rebuilds nested trees from the stored structure, and
maintains per-atom and aggregate per-context embeddings through a queue
drained by a sequential worker.
"""
