from .cli import globfind

if __name__ == "__main__":
    globfind(windows_expand_args=False)
