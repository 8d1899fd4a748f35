from pathlib import Path

from setuptools import find_namespace_packages, setup


def load_requirements() -> list[str]:
    req_path = Path(__file__).parent / "requirements.txt"
    lines = req_path.read_text(encoding="utf-8").splitlines()
    return [
        line.strip()
        for line in lines
        if line.strip() and not line.strip().startswith("#")
    ]


setup(
    name="kanjideck",
    version="0.1.0",
    description="Build Japanese vocabulary notes from Jisho and kanjiapi and add them to Anki",
    packages=find_namespace_packages(include=["kanjideck", "kanjideck.*"]),
    python_requires=">=3.10",
    install_requires=load_requirements(),
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "kanjideck=kanjideck.__main__:main",
        ]
    },
)
