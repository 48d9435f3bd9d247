# Model configurations for the chat assistant.
#
# Pricing is expressed per 1M tokens, matching the public OpenAI pricing pages
# and the remote catalog format. See config/constants.py for provenance.

# Logical chat model ids exposed to clients, resolved to upstream model ids
CHAT_MODELS = {
    "chat-model": {
        "model": "gpt-4o-mini",
        "name": "Chat model",
        "description": "Primary model for all-purpose chat",
    },
    "chat-model-reasoning": {
        "model": "gpt-4o",
        "name": "Reasoning model",
        "description": "Uses advanced reasoning",
    },
    "title-model": {
        "model": "gpt-4o-mini",
        "name": "Title model",
        "description": "Generates short chat titles",
    },
}

DEFAULT_CHAT_MODEL = "chat-model"

MODEL_CONFIGS = {
    "gpt-4o-mini": {
        "display_name": "GPT-4o Mini",
        "input_cost_per_1m_tokens": 0.15,
        "output_cost_per_1m_tokens": 0.6,
        "cached_input_cost_per_1m_tokens": 0.075,
        "context_window": 128000,
    },
    "gpt-4o": {
        "display_name": "GPT-4o",
        "input_cost_per_1m_tokens": 2.5,
        "output_cost_per_1m_tokens": 10.0,
        "cached_input_cost_per_1m_tokens": 1.25,
        "context_window": 128000,
    },
    "gpt-4.1-mini": {
        "display_name": "GPT-4.1 Mini",
        "input_cost_per_1m_tokens": 0.4,
        "output_cost_per_1m_tokens": 1.6,
        "cached_input_cost_per_1m_tokens": 0.1,
        "context_window": 1047576,
    },
    "gpt-4.1": {
        "display_name": "GPT-4.1",
        "input_cost_per_1m_tokens": 2.0,
        "output_cost_per_1m_tokens": 8.0,
        "cached_input_cost_per_1m_tokens": 0.5,
        "context_window": 1047576,
    },
    "o4-mini": {
        "display_name": "o4-mini",
        "input_cost_per_1m_tokens": 1.1,
        "output_cost_per_1m_tokens": 4.4,
        "cached_input_cost_per_1m_tokens": 0.275,
        "context_window": 200000,
    },
    "gpt-5-mini": {
        "display_name": "GPT-5 Mini",
        "input_cost_per_1m_tokens": 0.25,
        "output_cost_per_1m_tokens": 2.0,
        "cached_input_cost_per_1m_tokens": 0.025,
        "context_window": 400000,
    },
    "gpt-5": {
        "display_name": "GPT-5",
        "input_cost_per_1m_tokens": 1.25,
        "output_cost_per_1m_tokens": 10.0,
        "cached_input_cost_per_1m_tokens": 0.125,
        "context_window": 400000,
    },
}


def resolve_chat_model(chat_model_id: str) -> str:
    """Map a logical chat model id to the upstream model id."""
    config = CHAT_MODELS.get(chat_model_id)
    if not config:
        raise ValueError(f"Unsupported model id: {chat_model_id}")
    return config["model"]
