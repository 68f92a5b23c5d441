"""Default prompts."""


def trim_prompt(prompt: str) -> str:
    """Strip the indentation of a triple-quoted prompt, line by line."""
    return "\n".join(line.strip() for line in prompt.split("\n"))


DEFAULT_SYSTEM_PROMPT = trim_prompt(
    """
    Please answer the following user question based on the user's language.
    You can make tool calls to get information.
    Please also tell what you want to do when you are making a tool call.
    If a tool call fails, you can try another way, don't give up too soon.
    If you need to prune the message history, use the @prune tool.
    """
)
