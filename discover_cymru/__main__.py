"""Run the API with Quart's development server: python -m discover_cymru"""
import os

from discover_cymru.src.app import app

app.run(host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "5010")))
