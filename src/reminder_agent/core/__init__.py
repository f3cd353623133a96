"""
Agent core.

Components:
- ports.py: protocols the core depends on (completion client, tool client)
- persona.py: system prompts
- agent.py: the tool-calling loop
- schedule.py: cron-driven periodic callback
- state.py: AppState shared by the CLI and console
"""
