from setuptools import setup, find_packages

setup(
    name="skywatch-ph",
    version="0.1.0",
    description="Skywatch PH weather backend",
    package_dir={"": "backend"},
    packages=find_packages(where="backend"),
    python_requires=">=3.11",
    install_requires=[
        "httpx>=0.23",
        "fastapi>=0.95",
        "uvicorn>=0.22",
        "python-dateutil>=2.8",
        "python-dotenv>=1.0",
        "slowapi>=0.1.8",
        "beautifulsoup4>=4.12",
        "lxml>=4.9",  # XML tree builder for BeautifulSoup (RSS feeds)
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
            "pytest-httpx>=0.23",
        ],
        "lint": [
            "black>=23.0",
            "flake8>=6.0",
        ],
    },
)
