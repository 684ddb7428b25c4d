"""
Music Folio Library

Modules:
    encoder  - Chunked base64 encoding of uploaded media
    music    - Music theory helpers (keys, harmonic field)
    parser   - Gateway response parsing and chord extraction
    models   - Sheet music, cifras, gateway requests and responses
    errors   - Error taxonomy
    llm      - AI gateway client wrapper
    handler  - Transcription request handling (framework-free)
    endpoint - HTTP client for a running transcription endpoint
    state    - In-memory application state and reducers
    views    - Partituras and Cifras tab views
"""
