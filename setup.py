from setuptools import setup, find_packages

setup(
    name="carevoice",
    version="0.1.0",
    description="Live speech capture, medical-aware translation and spoken playback prototype",
    author="",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pyaudio>=0.2.11",
        "google-cloud-speech>=2.16.0",
        "google-auth>=2.10.0",
        "google-api-core>=2.0.0",
        "pyttsx3>=2.90",
        "rich>=12.5.0",
        "pydantic>=2.0.0",
        "pyyaml>=6.0.0",
        "pypubsub>=4.0.3",
        "aiohttp>=3.8.0",
        "aiohttp-cors>=0.7.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "carevoice=carevoice.main:main",
        ],
    },
)
