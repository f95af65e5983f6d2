"""
Generation Module
=================

Bounded Context for contextual draft reply generation.

Responsibilities:
- Retrieve knowledge base articles relevant to the customer's question
- Assemble a grounded prompt with citation rules and conversation history
- Generate the reply through the configured completion provider
- Extract cited article ids and score citation quality
"""

__version__ = "1.0.0"
