"""Cost estimation for summarization API calls."""

# Approximate costs per 1M tokens (input/output)
# These are estimates - actual costs may vary
MODEL_COSTS = {
    "gpt-3.5-turbo": {"input": 0.50, "output": 1.50},
    "gpt-4": {"input": 30.00, "output": 60.00},
    "gpt-4-turbo": {"input": 10.00, "output": 30.00},
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
}

PROMPT_TOKENS = 100  # instructions wrapped around each request
PARTIAL_SUMMARY_TOKENS = 250
FINAL_SUMMARY_TOKENS = 500

# Thresholds for warnings
WARN_TRANSCRIPT_TOKENS = 50_000  # ~80 chunks at the default size
WARN_ESTIMATED_COST = 0.50  # $0.50 threshold for warning


def _cost(model: str, input_tokens: int, output_tokens: int) -> float:
    costs = MODEL_COSTS.get(model, MODEL_COSTS["gpt-4"])
    input_cost = (input_tokens / 1_000_000) * costs["input"]
    output_cost = (output_tokens / 1_000_000) * costs["output"]
    return input_cost + output_cost


def estimate_summarization_cost(
    token_count: int,
    num_chunks: int,
    chunk_model: str = "gpt-3.5-turbo",
    aggregate_model: str = "gpt-4",
) -> dict:
    """
    Estimate cost for summarizing a transcript.

    Args:
        token_count: Tokens in the whole transcript
        num_chunks: Number of chunks the transcript splits into
        chunk_model: Model used per chunk
        aggregate_model: Model used for the final merge

    Returns dict with:
        - num_chunks: number of transcript chunks
        - estimated_input_tokens: total input tokens (chunks + prompts)
        - estimated_output_tokens: approximate output tokens
        - estimated_cost: cost in USD
        - should_warn: whether to show warning
    """
    if num_chunks <= 0:
        return {
            "num_chunks": 0,
            "estimated_input_tokens": 0,
            "estimated_output_tokens": 0,
            "estimated_cost": 0.0,
            "should_warn": False,
        }

    # Map phase: each chunk + prompt -> one partial summary
    map_input = token_count + num_chunks * PROMPT_TOKENS
    map_output = num_chunks * PARTIAL_SUMMARY_TOKENS

    # Reduce phase: all partial summaries + prompt -> final summary
    reduce_input = map_output + PROMPT_TOKENS
    reduce_output = FINAL_SUMMARY_TOKENS

    total_cost = _cost(chunk_model, map_input, map_output) + _cost(
        aggregate_model, reduce_input, reduce_output
    )

    return {
        "num_chunks": num_chunks,
        "estimated_input_tokens": map_input + reduce_input,
        "estimated_output_tokens": map_output + reduce_output,
        "estimated_cost": total_cost,
        "should_warn": token_count > WARN_TRANSCRIPT_TOKENS or total_cost > WARN_ESTIMATED_COST,
    }


def format_cost_warning(
    operation: str,
    estimated_cost: float,
    details: str = "",
) -> str:
    """Format a cost warning message."""
    msg = f"⚠️  {operation} may cost approximately ${estimated_cost:.3f}"
    if details:
        msg += f"\n   {details}"
    return msg
