import logging

from designer.core.app import App
from designer.core.state import APP_TITLE, load_settings
from designer.screens import DesignerScreen


def main():
    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format="[%(asctime)s %(name)s] [%(levelname)s] %(message)s")
    logging.getLogger("PIL").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    app = App(title=APP_TITLE)
    app.show_screen(DesignerScreen, settings=settings)
    app.protocol("WM_DELETE_WINDOW", app.quit_app)
    app.mainloop()


if __name__ == "__main__":
    main()
