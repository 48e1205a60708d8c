from setuptools import setup, find_packages

setup(
    name="persona-panel",
    version="0.1.0",
    description="Conversation moderation engine for multi-agent persona discussions",
    author="Persona Panel Developer",
    python_requires=">=3.11",
    packages=find_packages(include=["persona_panel", "persona_panel.*"]),
    install_requires=[
        "pydantic>=2.5.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "persona-panel=persona_panel.simulation.runner:main",
        ],
    },
)
