from event_presence.main import create_app

app = create_app()

if __name__ == "__main__":
    # One request per scan; threads let scans of different participants overlap.
    app.run(threaded=True)
