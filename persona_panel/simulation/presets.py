"""
Built-in agent rosters for demos and scripted simulations
"""

from typing import Dict, List

from pydantic import BaseModel

from ..core.models import Agent


class PanelPreset(BaseModel):
    """A named roster of agents for one kind of discussion"""
    id: str
    name: str
    description: str
    agents: List[Agent]


SOFTWARE_DEVELOPMENT = PanelPreset(
    id="software-development",
    name="Software Development",
    description="Plan and architect a new software feature with an engineering team.",
    agents=[
        Agent(
            id="alex",
            name="Alex Frontend Engineer",
            role="Principal Frontend Engineer focused on React, TypeScript, design systems and performance.",
            color="#3b82f6"
        ),
        Agent(
            id="brenda",
            name="Brenda Backend Engineer",
            role="Staff Backend Engineer specializing in distributed systems, API design and database optimization.",
            color="#10b981"
        ),
        Agent(
            id="charles",
            name="Charles SRE/DevOps",
            role="Principal Site Reliability Engineer (SRE) with expertise in Kubernetes, CI/CD and devops automation.",
            color="#ef4444"
        ),
        Agent(
            id="diana",
            name="Diana Product Manager",
            role="Senior Product Manager driving product strategy, user research and data analytics.",
            color="#f59e0b"
        ),
    ]
)

MARKETING = PanelPreset(
    id="marketing",
    name="Marketing",
    description="Develop a go-to-market strategy with a marketing team.",
    agents=[
        Agent(
            id="ethan",
            name="Ethan Content Director",
            role="Senior Content Director with expertise in SEO, content strategy and topic clusters.",
            color="#8b5cf6"
        ),
        Agent(
            id="fiona",
            name="Fiona Performance Marketer",
            role="Performance Marketing Manager specializing in paid social and conversion optimization.",
            color="#ec4899"
        ),
        Agent(
            id="george",
            name="George Brand Lead",
            role="Brand Strategy Lead focused on positioning, community building and partnerships.",
            color="#14b8a6"
        ),
        Agent(
            id="hannah",
            name="Hannah VP of Marketing",
            role="VP of Marketing with P&L responsibility, marketing mix modeling and budget allocation.",
            color="#f97316"
        ),
    ]
)

PRESETS: Dict[str, PanelPreset] = {
    preset.id: preset for preset in (SOFTWARE_DEVELOPMENT, MARKETING)
}


def get_preset(preset_id: str) -> PanelPreset:
    try:
        return PRESETS[preset_id]
    except KeyError:
        raise KeyError(f"Unknown preset '{preset_id}'. Available: {', '.join(sorted(PRESETS))}") from None
