from .editor import DesignerScreen, NoticeDialog
