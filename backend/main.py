from latex_assistant.app import create_app

app = create_app()
