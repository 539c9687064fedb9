"""Generation parameters for each coaching stage.

Model names come from settings; sampling parameters are fixed per stage:
- Guardrail: near-deterministic, short
- Diagnostic: low temperature
- Intervention: slightly more creative, longest output
- Reflection artifacts: warmest wording
"""

from dataclasses import dataclass

from auracoach.config.settings import Settings
from auracoach.llm.backend import CompletionOptions


@dataclass(frozen=True)
class StageConfig:
    temperature: float
    max_tokens: int
    model_setting: str

    def options(self, config: Settings) -> CompletionOptions:
        return CompletionOptions(
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            model=getattr(config, self.model_setting),
        )


GUARDRAIL = StageConfig(temperature=0.1, max_tokens=500, model_setting="guardrail_model")
DIAGNOSTIC = StageConfig(temperature=0.3, max_tokens=800, model_setting="diagnostic_model")
INTERVENTION = StageConfig(temperature=0.4, max_tokens=1000, model_setting="intervention_model")
REFLECTION = StageConfig(temperature=0.5, max_tokens=600, model_setting="intervention_model")
