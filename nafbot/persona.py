# Standard Library
from dataclasses import dataclass

# Local Modules
from nafbot.config import Settings


@dataclass
class Persona:
    organisation: str
    verbosity: float

    @classmethod
    def from_settings(cls, settings: Settings) -> "Persona":
        """Builds the persona from the ``persona_*`` settings."""
        return cls(
            organisation=settings.persona_organisation,
            verbosity=settings.persona_verbosity,
        )


class PersonaManager:
    """Translates persona settings into the system turn sent to the model."""

    def __init__(self, persona: Persona):
        self.persona = persona

    def generate_system_prompt(self) -> str:
        """Constructs the system prompt for the configured organisation."""
        org = self.persona.organisation
        traits: list[str] = [
            f"You are a helpful assistant answering questions about {org}, "
            "its drug and food regulation, product registration, approvals "
            "and published guidelines.",
            "Be courteous and professional.",
        ]

        if self.persona.verbosity >= 0.8:
            traits.append(
                "Give thorough answers and walk through each step of a process."
            )
        elif self.persona.verbosity <= 0.3:
            traits.append("Answer in as few sentences as possible.")
        else:
            traits.append("Keep answers short and to the point.")

        guardrail = (
            "\n\nNever invent fees, deadlines, registration numbers or legal "
            "requirements. If you are unsure, say so and direct the user to "
            f"{org}'s official channels. Politely decline questions unrelated "
            "to health products and their regulation."
        )

        return " ".join(traits) + guardrail
