from tales import create_app, db, socketio
from tales.seed import seed_reference_data

app = create_app()

if __name__ == '__main__':
    with app.app_context():
        db.create_all()
        seed_reference_data()
    # Use SocketIO server to enable websockets in dev
    socketio.run(app, debug=True)
