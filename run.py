import os
from staffdesk import create_app

app = create_app()

if __name__ == "__main__":
    # backend REST costuma ocupar a 5000
    app.run(host="127.0.0.1", port=int(os.getenv("PORT", "8000")), debug=bool(int(os.getenv("FLASK_DEBUG", "1"))))
