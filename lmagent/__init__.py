"""
lmagent: agents driving LangChain chat models in a plan/act loop.

Packages:
    agents: agents and their builders
    executor: the plan/act loop
    chains: model calls without tools
    output_parser: interpretation of the text responses of the model
    tools: tools and toolboxes
    memory: conversational memory
    config: settings read from config.toml
    language_models: creation of LangChain chat models
"""
