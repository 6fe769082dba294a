"""Core orchestration: plan, context, workers and the deck orchestrator."""
