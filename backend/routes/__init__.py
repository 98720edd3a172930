from backend.routes import admin, auth, claps, comments, posts

routers = [auth.router, posts.router, claps.router, comments.router, admin.router]
