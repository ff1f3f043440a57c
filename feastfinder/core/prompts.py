"""Prompt templates sent to the language model.

Each template asks for a JSON object so the reply can be parsed into the
cultural data models without free-text scraping.
"""

from feastfinder.domain.models.common import PromptText

_COMBINED_TEMPLATE = """For the country "{country}", provide:
1. the most famous traditional dishes eaten during the Christmas holidays in JSON format
2. A famous Christmas carol from this country

For dishes, return exactly one dish for each category (entry/appetizer, main course, dessert) if available.
For each dish, include:
- name: string (dish name)
- description: string (brief 1-3 sentence description)
- ingredients: string[] (list of main ingredients)

For the Christmas carol, include:
- name: string (carol name)
- author: string | null (author/composer name if available, null if unknown/traditional)

Format the response as a JSON object with this structure:
{{
  "dishes": {{
    "entry": {{ "name": "...", "description": "...", "ingredients": [...] }} | null,
    "main": {{ "name": "...", "description": "...", "ingredients": [...] }} | null,
    "dessert": {{ "name": "...", "description": "...", "ingredients": [...] }} | null
  }},
  "carol": {{
    "name": "...",
    "author": "..." | null
  }} | null
}}

If a dish category has no famous dishes, set it to null. If no famous Christmas carol exists, set carol to null."""

_STRICT_FORMAT_SUFFIX = """

IMPORTANT: You must respond with valid JSON only. Ensure:
- All required fields for dishes are present (name, description, ingredients)
- Ingredients is an array of strings (not a single string or object)
- Carol object has name field (required) and author field (null if unknown)
- JSON is properly formatted and parseable
- Dish categories without dishes are set to null
- Carol is set to null if no famous Christmas carol exists
- At least one dish category must be non-null OR carol must be non-null"""

_RECIPE_TEMPLATE = """Provide a step-by-step recipe for "{dish}" from {country}.

Format the recipe as a JSON object with this structure:
{{
  "steps": [
    {{
      "stepNumber": 1,
      "instruction": "Step instruction text",
      "details": "Optional additional details, tips, or timing information"
    }}
  ]
}}

Each step should be clear and actionable. Include preparation time, cooking time, and serving size if relevant.
The recipe should be authentic to {country} cuisine and Christmas traditions.
The steps array must contain at least one step, and steps must be numbered sequentially starting from 1."""


def build_combined_prompt(country: str) -> PromptText:
    """Asks for one dish per category plus a carol for `country`."""
    return PromptText(_COMBINED_TEMPLATE.format(country=country))


def build_refined_combined_prompt(country: str) -> PromptText:
    """The combined prompt with stricter format rules, used for the second attempt."""
    return PromptText(build_combined_prompt(country) + _STRICT_FORMAT_SUFFIX)


def build_recipe_prompt(dish_name: str, country: str) -> PromptText:
    return PromptText(_RECIPE_TEMPLATE.format(dish=dish_name, country=country))
