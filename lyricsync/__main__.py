from lyricsync.cli import main

main()
