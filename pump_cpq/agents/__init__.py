from pump_cpq.agents.quote_agent import (
    QuoteAgent,
    SessionFailedError,
    StepResult,
    create_quote_agent,
)

__all__ = ["QuoteAgent", "StepResult", "SessionFailedError", "create_quote_agent"]
