"""devagent infrastructure layer - model gateway clients.

All external model communication (Anthropic, OpenAI) goes through this
package.  Use :func:`~infra.factory.build_gateway` to obtain a gateway.

Quick start::

    import httpx
    from langchain_core.messages import HumanMessage
    from infra.factory import build_gateway

    async with httpx.AsyncClient(timeout=300) as http:
        gateway = build_gateway("gpt-4", http, name="generation", openai_api_key="sk-...")
        text = await gateway.complete("You are a C# expert.", [HumanMessage("...")], 4000, 0.1)
"""
