#!/usr/bin/env python3
import os
from dotenv import load_dotenv
from lounge import create_app

# Load environment variables
load_dotenv()

# Create the Flask application (tables, station rows and the ticker are set up here)
app = create_app()

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5001))
    # The reloader would start a second ticker in the parent process
    app.run(host="0.0.0.0", port=port, debug=True, use_reloader=False, threaded=True)
