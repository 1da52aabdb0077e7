"""
LLM Mini-Apps - small terminal demos on top of interchangeable LLM providers.

- llm: provider interface plus OpenAI, DeepSeek and Gemini implementations
- weather: Open-Meteo client and the conversational weather service
- apps: the command-line mini-apps
"""

__version__ = "1.0.0"
