"""Services for the Interview Coach backend.

- interview_state: session data model and API envelopes
- coaching_signals: signal and rolling-score arithmetic
- text_generator: Anthropic/OpenAI text generation collaborators
- structured_output: bounded-retry JSON resolution with fallback signalling
- kv_store: key-value persistence of session documents
- session_store: typed read-modify-write session operations
- interview_orchestrator: per-message command/question/grade dispatch

Submodules are imported directly (e.g. ``interview_coach.services.session_store``);
the prompt builders depend on ``interview_state``, so this package stays import-light.
"""
