"""
Multi-agent group chat engine.

Modules:
- states: session/participant/message data model + enums
- personas: fixed persona catalogue, response templates and styles
- classifier: keyword heuristics for importance, tags and reply type
- switchboard: per-participant provider configuration
- llm: LangChain chat clients for OpenAI and Anthropic
- agents: ResponseGenerator (provider reply or template fallback)
- turns: next-speaker selection per turn-order policy
- coordination: CoordinationEngine per-session response cycle
- manager: SessionManager, the owner of all session state
- synthesis: end-of-session summary
- api: FastAPI `POST /generate`
"""
