"""
Semantix: semantic lore book retrieval for SillyTavern.

Users mark a contiguous range of world info entries, send it to a
vectorization backend, and get the most relevant entries injected into each
outgoing prompt.

Components:
    - selection: Range selection state machine and display state derivation
    - entry_registry: Known lore entries and the entry-added channel
    - session: Per-user selection, settings view and range submission
    - backend_client: Store and search calls to the vectorization backend
    - interceptor: Prompt injection for both host calling conventions
    - settings_store: Persisted extension settings
    - main: FastAPI app exposing the above to the front end
"""
